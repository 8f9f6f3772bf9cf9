"""
Service Organization
====================

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: SensorDiscoveryService, MonitoringSettingsService, TelegramNotifier

**container.py / container_builder.py**
  Construction and wiring of every service; see ``ServiceContainer.build()``.

**protocols.py**
  Structural interface (``RelationalStore``) the services depend on instead
  of the concrete store adapters.
"""
