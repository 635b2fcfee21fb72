"""Catalog domain - service categories, services, products and banners"""
