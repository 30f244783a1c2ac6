"""Demo backend for Stripe Connect onboarding and Treasury outbound payments."""

__version__ = "0.1.0"
