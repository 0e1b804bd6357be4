"""Accounts domain - OTP and password login, registration and profile"""
