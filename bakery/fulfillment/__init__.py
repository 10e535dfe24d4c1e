"""Fulfillment collaborators: slot schedule and delivery radius"""
