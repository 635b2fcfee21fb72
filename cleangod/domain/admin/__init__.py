"""Admin domain - catalog management, staff and dashboard statistics"""
