"""Appointments domain - booking engine and appointment lifecycle"""
