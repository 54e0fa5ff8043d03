"""Payment domain - payment collection per entry and per group"""
