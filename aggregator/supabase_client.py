"""Supabase client initialization and helpers."""

from supabase import Client, ClientOptions, create_client

from aggregator.config import Settings


def create_supabase_client(settings: Settings) -> Client:
    """Build a Supabase client bounded by the per-call store timeout."""
    options = ClientOptions(postgrest_client_timeout=settings.store.timeout_seconds)
    return create_client(
        settings.supabase_url,
        settings.effective_supabase_secret_key,
        options=options,
    )
