"""Proposal Gate backend: approval workflow for campus event and club proposals."""
