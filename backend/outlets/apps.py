from django.apps import AppConfig


class OutletsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'outlets'
    verbose_name = 'Outlets'

    def ready(self):
        """Import signals when app is ready"""
        import outlets.signals  # noqa
