"""
Banque Rupt

A simulated retail bank: accounts, transfers, back-office adjustments
with exact reversal, and card issuance. All amounts use Decimal.
"""

__version__ = "1.0.0"
