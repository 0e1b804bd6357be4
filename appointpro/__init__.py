"""AppointPro booking API"""
