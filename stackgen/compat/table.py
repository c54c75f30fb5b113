"""Static compatibility table for the technology templates."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field


class Compatibility(BaseModel):
    """What a template works with, what it cannot be combined with, and caveats."""

    model_config = ConfigDict(frozen=True)

    template_id: str
    compatible_with: tuple[str, ...] = Field(default_factory=tuple)
    incompatible_with: tuple[str, ...] = Field(default_factory=tuple)
    warnings: tuple[str, ...] = Field(default_factory=tuple)


def _entry(
    template_id: str,
    compatible_with: tuple[str, ...] = (),
    incompatible_with: tuple[str, ...] = (),
    warnings: tuple[str, ...] = (),
) -> tuple[str, Compatibility]:
    return template_id, Compatibility(
        template_id=template_id,
        compatible_with=compatible_with,
        incompatible_with=incompatible_with,
        warnings=warnings,
    )


COMPATIBILITY_TABLE: Mapping[str, Compatibility] = MappingProxyType(
    dict(
        [
            # Authentication
            _entry(
                "clerk",
                compatible_with=("nextjs-base", "supabase", "stripe", "vercel"),
                incompatible_with=("nextauth", "supabase-auth"),
                warnings=("Clerk requires organization setup for B2B features",),
            ),
            _entry(
                "nextauth",
                compatible_with=("nextjs-base", "supabase", "planetscale", "stripe"),
                incompatible_with=("clerk", "supabase-auth", "remix-base", "sveltekit-base"),
                warnings=("NextAuth requires additional setup for organization management",),
            ),
            _entry(
                "supabase-auth",
                compatible_with=("nextjs-base", "supabase"),
                incompatible_with=("clerk", "nextauth", "planetscale", "neon"),
            ),
            # Database
            _entry(
                "supabase",
                compatible_with=("nextjs-base", "clerk", "nextauth", "supabase-auth", "vercel"),
            ),
            _entry(
                "planetscale",
                compatible_with=("nextjs-base", "clerk", "nextauth", "vercel"),
                incompatible_with=("supabase-auth",),
                warnings=("PlanetScale requires Prisma for type safety",),
            ),
            _entry(
                "neon",
                compatible_with=("nextjs-base", "clerk", "nextauth", "vercel"),
                incompatible_with=("supabase-auth",),
                warnings=("Neon branches are billed separately from the main database",),
            ),
            # Payments
            _entry(
                "stripe",
                compatible_with=("nextjs-base", "clerk", "nextauth", "supabase", "planetscale"),
                incompatible_with=("paddle",),
                warnings=("Stripe webhooks require HTTPS in production",),
            ),
            _entry(
                "paddle",
                compatible_with=("nextjs-base", "clerk", "supabase"),
                incompatible_with=("stripe",),
                warnings=("Paddle requires a verified seller account before going live",),
            ),
            # UI
            _entry(
                "shadcn",
                compatible_with=("nextjs-base", "remix-base"),
                incompatible_with=("chakra", "mantine", "sveltekit-base"),
            ),
            _entry(
                "chakra",
                compatible_with=("nextjs-base", "remix-base"),
                incompatible_with=("shadcn", "mantine", "sveltekit-base"),
            ),
            _entry(
                "mantine",
                compatible_with=("nextjs-base", "remix-base"),
                incompatible_with=("shadcn", "chakra", "sveltekit-base"),
            ),
        ]
    )
)
