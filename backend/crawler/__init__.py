"""
AFPB score crawler.
Scrapes round results from afpbarcelos.pt, reconciles them against the live games
reported by Domingo às Dez and forwards new, unsent score updates.
"""
