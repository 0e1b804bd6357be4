"""Catalog domain - service categories and property types"""
