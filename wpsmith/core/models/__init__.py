"""
Domain models — Pydantic types for wpsmith.

All models are re-exported here for convenient access:

    from wpsmith.core.models import Blueprint, CheckpointIndex, CheckpointRecord, Seeder
"""

from wpsmith.core.models.blueprint import (
    BLUEPRINT_SCHEMA,
    Blueprint,
    BlueprintStep,
    GenericStep,
    InstallPluginStep,
    InstallThemeStep,
    LoginStep,
    PluginData,
    PreferredVersions,
    RunPHPStep,
    SetSiteOptionsStep,
    ThemeData,
    WpsmithSettings,
)
from wpsmith.core.models.checkpoint import CheckpointIndex, CheckpointRecord
from wpsmith.core.models.seeder import DEFAULT_SEEDER, Seeder, SeederStep

__all__ = [
    # blueprint.py
    "BLUEPRINT_SCHEMA",
    "Blueprint",
    "BlueprintStep",
    "GenericStep",
    "InstallPluginStep",
    "InstallThemeStep",
    "LoginStep",
    "PluginData",
    "PreferredVersions",
    "RunPHPStep",
    "SetSiteOptionsStep",
    "ThemeData",
    "WpsmithSettings",
    # checkpoint.py
    "CheckpointIndex",
    "CheckpointRecord",
    # seeder.py
    "DEFAULT_SEEDER",
    "Seeder",
    "SeederStep",
]
