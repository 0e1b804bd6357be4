"""Outbound integrations"""
