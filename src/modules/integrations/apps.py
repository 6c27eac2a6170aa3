from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    name = "modules.integrations"
    label = "integrations"

    def ready(self) -> None:
        from modules.integrations.registry import get_external_clients

        get_external_clients()
