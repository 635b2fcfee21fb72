"""Users domain - profile and notification preferences"""
