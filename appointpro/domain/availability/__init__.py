"""Availability domain - bookable dates and time slots"""
