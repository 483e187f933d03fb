"""
Storefront demo — full checkout against simulated services.

Run: python -m examples.storefront.main
"""
