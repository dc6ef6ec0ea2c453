"""Settings domain - key/value store for instance-wide configuration"""
