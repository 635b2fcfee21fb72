"""Addresses domain - a customer's saved service addresses"""
