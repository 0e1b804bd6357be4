"""OTP domain - one-time code storage, delivery and verification"""
