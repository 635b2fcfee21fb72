"""Cart domain - the device cart and its price preview"""
