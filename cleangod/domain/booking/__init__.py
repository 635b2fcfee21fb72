"""Booking domain - wizard state machine, pricing, submission and booking lifecycle"""
