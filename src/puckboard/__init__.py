"""Puckboard: standings and season-statistics recalculation for a hockey league."""
