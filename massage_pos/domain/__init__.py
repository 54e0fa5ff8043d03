"""Shop domains - roster, assignment engine and payments"""
