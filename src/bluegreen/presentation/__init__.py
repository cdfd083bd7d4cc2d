"""Presentation layer: console rendering of deployment results."""

from bluegreen.presentation.console import DeploymentConsole

__all__ = ["DeploymentConsole"]
