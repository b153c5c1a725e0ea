"""
Schema helpers for Postgres.
"""
from __future__ import annotations

import logging

from core.db.base import get_conn

log = logging.getLogger("db")

# Timestamps are stored as ISO-8601 TEXT (UTC), nested objects as JSONB.
TABLES = {
    "app_users": """
        CREATE TABLE IF NOT EXISTS app_users(
            id SERIAL PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE,
            instant_user_id TEXT UNIQUE,
            email TEXT NOT NULL,
            full_name TEXT,
            status TEXT NOT NULL DEFAULT 'active',
            created_at TEXT,
            updated_at TEXT,
            last_login_at TEXT
        )
    """,
    "accounts": """
        CREATE TABLE IF NOT EXISTS accounts(
            id SERIAL PRIMARY KEY,
            account_id TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            plan TEXT NOT NULL DEFAULT 'free',
            status TEXT NOT NULL DEFAULT 'active',
            timezone TEXT DEFAULT 'UTC',
            default_currency TEXT DEFAULT 'USD',
            country TEXT DEFAULT 'US',
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "account_memberships": """
        CREATE TABLE IF NOT EXISTS account_memberships(
            id SERIAL PRIMARY KEY,
            membership_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            app_user_id TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'owner',
            membership_status TEXT NOT NULL DEFAULT 'active',
            invited_by_user_id TEXT,
            joined_at TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "account_profiles": """
        CREATE TABLE IF NOT EXISTS account_profiles(
            id SERIAL PRIMARY KEY,
            profile_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            display_name TEXT,
            support_email TEXT,
            contact_phone TEXT,
            billing_address JSONB,
            logo_url TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "account_settings": """
        CREATE TABLE IF NOT EXISTS account_settings(
            id SERIAL PRIMARY KEY,
            settings_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            notifications JSONB,
            automation_defaults JSONB,
            privacy JSONB,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "billing_profiles": """
        CREATE TABLE IF NOT EXISTS billing_profiles(
            id SERIAL PRIMARY KEY,
            billing_profile_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            provider TEXT NOT NULL DEFAULT 'manual',
            provider_customer_id TEXT,
            provider_subscription_id TEXT,
            billing_email TEXT,
            billing_status TEXT,
            current_period_end TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "device_sessions": """
        CREATE TABLE IF NOT EXISTS device_sessions(
            id SERIAL PRIMARY KEY,
            session_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            app_user_id TEXT NOT NULL,
            user_agent TEXT,
            ip_address TEXT,
            last_seen_at TEXT,
            revoked_at TEXT,
            created_at TEXT
        )
    """,
    "purchases": """
        CREATE TABLE IF NOT EXISTS purchases(
            id SERIAL PRIMARY KEY,
            purchase_id TEXT NOT NULL,
            account_id TEXT NOT NULL,
            merchant TEXT NOT NULL,
            primary_item_title TEXT,
            purchase_time TEXT,
            currency TEXT DEFAULT 'USD',
            country TEXT DEFAULT 'US',
            total_paid DOUBLE PRECISION,
            delivery_estimate TEXT,
            cancellation_window_remaining INTEGER,
            cancellation_window_estimated BOOLEAN,
            cancellation_window_confidence DOUBLE PRECISION,
            cancellation_window_end TEXT,
            cancellation_window_inferred BOOLEAN,
            status TEXT NOT NULL,
            monitoring_enabled BOOLEAN NOT NULL DEFAULT TRUE,
            extraction_confidence_score DOUBLE PRECISION,
            issues JSONB,
            order_id TEXT,
            item_count INTEGER,
            last_scan_at TEXT,
            created_at TEXT,
            updated_at TEXT,
            UNIQUE(account_id, purchase_id)
        )
    """,
    "purchase_items": """
        CREATE TABLE IF NOT EXISTS purchase_items(
            id SERIAL PRIMARY KEY,
            purchase_item_id TEXT NOT NULL,
            account_id TEXT NOT NULL,
            purchase_id TEXT NOT NULL,
            title TEXT NOT NULL,
            attributes JSONB,
            quantity INTEGER NOT NULL DEFAULT 1,
            price DOUBLE PRECISION,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "deals": """
        CREATE TABLE IF NOT EXISTS deals(
            id SERIAL PRIMARY KEY,
            deal_id TEXT NOT NULL,
            account_id TEXT NOT NULL,
            purchase_id TEXT NOT NULL,
            merchant_or_seller TEXT,
            listing_url TEXT,
            match_tier TEXT NOT NULL,
            base_price DOUBLE PRECISION,
            shipping DOUBLE PRECISION,
            tax_estimate DOUBLE PRECISION,
            total_price DOUBLE PRECISION,
            delivery_estimate TEXT,
            return_policy_summary TEXT,
            coupon JSONB,
            reliability_score DOUBLE PRECISION,
            net_savings DOUBLE PRECISION,
            savings_percentage DOUBLE PRECISION,
            last_checked_at TEXT,
            in_stock_flag BOOLEAN NOT NULL DEFAULT TRUE,
            stock_confidence DOUBLE PRECISION,
            cross_border BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TEXT,
            updated_at TEXT
        )
    """,
    "audit_events": """
        CREATE TABLE IF NOT EXISTS audit_events(
            id SERIAL PRIMARY KEY,
            audit_event_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            purchase_id TEXT NOT NULL,
            type TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            label TEXT NOT NULL,
            detail TEXT,
            actor_user_id TEXT,
            metadata JSONB,
            created_at TEXT
        )
    """,
    "swap_executions": """
        CREATE TABLE IF NOT EXISTS swap_executions(
            id SERIAL PRIMARY KEY,
            swap_execution_id TEXT NOT NULL UNIQUE,
            account_id TEXT NOT NULL,
            purchase_id TEXT NOT NULL,
            selected_deal_id TEXT NOT NULL,
            mode TEXT NOT NULL,
            sequence_policy TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'draft',
            automation_blocked_reason TEXT,
            confirmed_at TEXT,
            completed_at TEXT,
            failure_reason TEXT,
            actor_user_id TEXT,
            created_at TEXT,
            updated_at TEXT
        )
    """,
}


def init_db() -> None:
    """Create every AfterSave table if it doesn't exist."""
    conn = get_conn()
    cur = conn.cursor()

    for ddl in TABLES.values():
        cur.execute(ddl)

    conn.commit()
    conn.close()
    log.info("Schema ready (%d tables)", len(TABLES))


__all__ = [
    "TABLES",
    "init_db",
]
