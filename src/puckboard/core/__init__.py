"""Recalculation engine: scoring rules, aggregators, ranking and scope locks.

Every recompute is a pure function of stored state. Callers pass explicit
round/season ids; nothing here reads an ambient "current season".
"""
