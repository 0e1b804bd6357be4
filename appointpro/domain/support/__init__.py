"""Support domain - user tickets and admin triage"""
