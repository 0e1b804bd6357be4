"""Cross-domain validators and error types"""
