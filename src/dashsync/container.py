"""Dependency Injection container for dashsync.

This module wires the application with the dependency-injector library:

- The OAuth provider registry is a singleton built once from configuration
- The dashboard store, alert service and guardian factory are supplied by
  the embedding application
- Each call to ``container.dashboard_service()`` creates a service bound to
  those shared collaborators

Usage:
    # Production setup
    container = create_container(store=sql_store, alerts=alerting, guardian_factory=new_guardian)
    service = container.dashboard_service()

    # Test setup with fakes
    container = create_container(config=Config(), oauth_settings=OAuthSettings())
    container.store.override(providers.Object(InMemoryDashboardStore()))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dependency_injector import containers, providers

from dashsync.dashboard_service import DashboardService
from dashsync.mirror import DashboardMirror
from dashsync.social.registry import OAuthProviderRegistry, new_oauth_service

if TYPE_CHECKING:
    from dashsync.config import Config
    from dashsync.guardian import GuardianFactory
    from dashsync.social.settings import OAuthSettings
    from dashsync.store import AlertService, DashboardStore


def create_registry(config: Config, settings: OAuthSettings) -> OAuthProviderRegistry:
    """Create the OAuth provider registry.

    Args:
        config: Application configuration.
        settings: Loaded OAuth provider settings.

    Returns:
        Registry with one connector per enabled provider.
    """
    return new_oauth_service(
        settings,
        app_url=config.server.app_url,
        grafana_com_url=config.server.grafana_com_url,
        timeout=config.http_timeout,
    )


def load_settings(config: Config) -> OAuthSettings:
    """Load OAuth settings from the configured file, or return empty settings.

    Raises:
        ConfigurationError: If the configured file is invalid.
    """
    from dashsync.social.settings import OAuthSettings, load_oauth_settings

    if not config.oauth_configured:
        return OAuthSettings()
    return load_oauth_settings(config.oauth_config_path)


class DashSyncContainer(containers.DeclarativeContainer):
    """Main dependency injection container.

    DashSyncContainer
    ├── config (Config)
    ├── oauth_settings (OAuthSettings)
    ├── registry (OAuthProviderRegistry, singleton)
    ├── store / alerts / guardian_factory (supplied collaborators)
    ├── mirror (DashboardMirror)
    └── dashboard_service (DashboardService, factory)
    """

    config: providers.Dependency[Config] = providers.Dependency()
    oauth_settings: providers.Dependency[OAuthSettings] = providers.Dependency()

    # Collaborators owned by the embedding application
    store: providers.Dependency[DashboardStore] = providers.Dependency()
    alerts: providers.Dependency[AlertService] = providers.Dependency()
    guardian_factory: providers.Dependency[GuardianFactory] = providers.Dependency()

    registry = providers.Singleton(create_registry, config=config, settings=oauth_settings)

    mirror = providers.Factory(DashboardMirror, connectors=registry, store=store)

    dashboard_service = providers.Factory(
        DashboardService,
        store=store,
        alerts=alerts,
        guardian_factory=guardian_factory,
        mirror=mirror,
    )


def create_container(
    config: Config | None = None,
    oauth_settings: OAuthSettings | None = None,
    store: DashboardStore | None = None,
    alerts: AlertService | None = None,
    guardian_factory: GuardianFactory | None = None,
) -> DashSyncContainer:
    """Create and configure the DI container.

    Args:
        config: Optional configuration. If not provided, loads from environment.
        oauth_settings: Optional OAuth settings. If not provided, loads them
            from ``config.oauth_config_path`` (empty when unset).
        store: Optional dashboard store.
        alerts: Optional alert service.
        guardian_factory: Optional guardian factory.

    Collaborators that are not provided must be overridden before
    ``dashboard_service()`` is called.

    Returns:
        Configured DashSyncContainer.

    Raises:
        ConfigurationError: If the OAuth settings file is invalid.
    """
    from dashsync.config import load_config

    if config is None:
        config = load_config()

    if oauth_settings is None:
        oauth_settings = load_settings(config)

    container = DashSyncContainer()
    container.config.override(providers.Object(config))
    container.oauth_settings.override(providers.Object(oauth_settings))

    if store is not None:
        container.store.override(providers.Object(store))
    if alerts is not None:
        container.alerts.override(providers.Object(alerts))
    if guardian_factory is not None:
        container.guardian_factory.override(providers.Object(guardian_factory))

    return container
