"""Orders domain - product orders"""
