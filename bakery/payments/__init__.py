"""Payment and order reconciliation engine"""
