"""Reservations domain - booking flow and reservation lifecycle"""
