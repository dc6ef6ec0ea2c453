"""Users domain - lightweight profiles and user sessions"""
