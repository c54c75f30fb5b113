"""Setup guide generation.

The guide lists every setup step of the project (template steps, the
environment step and the deployment steps) as one ascending sequence,
grouped by category, followed by a summary of the chosen technologies and
troubleshooting notes for common and technology-specific issues.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from stackgen.generators.renderer import TemplateRenderer
from stackgen.merge.engine import merge_setup_instructions
from stackgen.models import (
    NONE,
    InstructionCategory,
    SelectionSet,
    SetupInstruction,
)
from stackgen.utils import to_title

SECTION_ORDER: tuple[InstructionCategory, ...] = (
    InstructionCategory.INSTALLATION,
    InstructionCategory.CONFIGURATION,
    InstructionCategory.DEPLOYMENT,
    InstructionCategory.TESTING,
)

ENV_SETUP_STEP = SetupInstruction(
    step=1,
    title="Configure Environment Variables",
    description=(
        "Copy the local template and fill in the values described in ENV_VARIABLES.md."
    ),
    command="cp .env.local.template .env.local",
    category=InstructionCategory.CONFIGURATION,
)

DISPLAY_NAMES: dict[str, str] = {
    "nextjs": "Next.js",
    "remix": "Remix",
    "sveltekit": "SvelteKit",
    "clerk": "Clerk",
    "supabase-auth": "Supabase Auth",
    "nextauth": "NextAuth.js",
    "supabase": "Supabase",
    "planetscale": "PlanetScale",
    "neon": "Neon",
    "vercel": "Vercel",
    "netlify": "Netlify",
    "railway": "Railway",
    "render": "Render",
    "stripe": "Stripe",
    "paddle": "Paddle",
    "posthog": "PostHog",
    "plausible": "Plausible",
    "ga4": "Google Analytics 4",
    "resend": "Resend",
    "postmark": "Postmark",
    "sendgrid": "SendGrid",
    "sentry": "Sentry",
    "bugsnag": "Bugsnag",
    "shadcn": "shadcn/ui",
    "chakra": "Chakra UI",
    "mantine": "Mantine",
}

STACK_LABELS: tuple[tuple[str, str], ...] = (
    ("framework", "Framework"),
    ("authentication", "Authentication"),
    ("database", "Database"),
    ("payments", "Payments"),
    ("analytics", "Analytics"),
    ("email", "Email"),
    ("monitoring", "Monitoring"),
    ("ui", "UI"),
    ("hosting", "Hosting"),
)


@dataclass(frozen=True)
class TroubleshootingItem:
    issue: str
    solution: str
    category: str


COMMON_ISSUES: tuple[TroubleshootingItem, ...] = (
    TroubleshootingItem(
        "npm install fails with dependency conflicts",
        "Try running `npm install --legacy-peer-deps` or delete node_modules and "
        "package-lock.json, then run `npm install` again.",
        "installation",
    ),
    TroubleshootingItem(
        "Environment variables not loading",
        "Ensure your .env.local file is in the project root and restart your "
        "development server.",
        "configuration",
    ),
    TroubleshootingItem(
        "TypeScript compilation errors",
        "Run `npm run build` to see detailed error messages. Check that all required "
        "dependencies are installed.",
        "runtime",
    ),
)

# (selection field, value) -> item shown when that technology is chosen.
TECHNOLOGY_ISSUES: dict[tuple[str, str], TroubleshootingItem] = {
    ("authentication", "clerk"): TroubleshootingItem(
        "Clerk authentication not working",
        "Verify your NEXT_PUBLIC_CLERK_PUBLISHABLE_KEY and CLERK_SECRET_KEY are set "
        "correctly. Check that your domain is configured in the Clerk dashboard.",
        "configuration",
    ),
    ("database", "supabase"): TroubleshootingItem(
        "Supabase connection fails",
        "Check your NEXT_PUBLIC_SUPABASE_URL and NEXT_PUBLIC_SUPABASE_ANON_KEY. Ensure "
        "your database is running and accessible.",
        "configuration",
    ),
    ("payments", "stripe"): TroubleshootingItem(
        "Stripe webhooks not working",
        "Verify your webhook endpoint URL is correct and your STRIPE_WEBHOOK_SECRET "
        "matches the webhook secret in your Stripe dashboard.",
        "configuration",
    ),
}


def display_name(value: str) -> str:
    return DISPLAY_NAMES.get(value, value)


def tech_stack(selections: SelectionSet) -> list[tuple[str, str]]:
    """``(label, display name)`` pairs for every category that is not ``none``."""
    return [
        (label, display_name(getattr(selections, field)))
        for field, label in STACK_LABELS
        if getattr(selections, field) != NONE
    ]


def troubleshooting(selections: SelectionSet) -> list[dict[str, Any]]:
    """Common and technology-specific issues, grouped by category in first-seen order."""
    items = list(COMMON_ISSUES)
    items.extend(
        item
        for (field, value), item in TECHNOLOGY_ISSUES.items()
        if getattr(selections, field) == value
    )
    groups: dict[str, list[TroubleshootingItem]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return [{"title": to_title(category), "issues": members} for category, members in groups.items()]


class SetupGuideGenerator:
    """Renders ``SETUP.md``."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    def combine(
        self,
        instructions: Sequence[SetupInstruction],
        deployment: Sequence[SetupInstruction] = (),
    ) -> list[SetupInstruction]:
        """Append the environment step and *deployment* after *instructions*."""
        steps = merge_setup_instructions(instructions, [ENV_SETUP_STEP])
        # Deployment steps arrive with fixed numbers; keep only their order.
        relative = [
            s.model_copy(update={"step": i + 1}) for i, s in enumerate(deployment)
        ]
        return merge_setup_instructions(steps, relative)

    def generate(
        self,
        project_name: str,
        selections: SelectionSet,
        instructions: Sequence[SetupInstruction],
        deployment: Sequence[SetupInstruction] = (),
        setup_time: int = 0,
    ) -> str:
        steps = self.combine(instructions, deployment)
        sections: list[dict[str, Any]] = []
        for category in SECTION_ORDER:
            members = [s for s in steps if s.category == category]
            if members:
                sections.append({"title": to_title(category.value), "steps": members})

        return self.renderer.render(
            "guide/SETUP.md.j2",
            {
                "project_name": project_name,
                "setup_time": setup_time,
                "sections": sections,
                "stack": tech_stack(selections),
                "troubleshooting": troubleshooting(selections),
            },
        )
