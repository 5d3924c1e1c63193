"""
UTXOLedger - CLI Package
==========================
"""
