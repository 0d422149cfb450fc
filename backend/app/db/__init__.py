"""
Database module for EcoWasteConnect

Contains seed data and database utilities.
"""
from app.db.seed_data import seed_all, seed_demo_data, clear_all

__all__ = ["seed_all", "seed_demo_data", "clear_all"]
