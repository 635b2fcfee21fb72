"""Coupons domain - promotional codes and their lookup"""
