"""Payments domain - Ziina payment intents and webhooks"""
