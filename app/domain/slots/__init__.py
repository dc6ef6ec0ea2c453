"""Slots domain - bookable time windows and their inventory management"""
