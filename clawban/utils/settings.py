"""Environment-driven service settings."""

import os


class Settings:
    """Service settings read from the environment."""

    SERVICE_NAME = os.environ.get("SERVICE_NAME", "clawban-backend")
    STORE_BACKEND = os.environ.get("CLAWBAN_STORE", "supabase").lower()
    SUPABASE_URL = os.environ.get("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    # Deployment profile: when false, tasks may be created with an empty description
    TASK_REQUIRE_DESCRIPTION = os.environ.get("TASK_REQUIRE_DESCRIPTION", "true").lower() == "true"
