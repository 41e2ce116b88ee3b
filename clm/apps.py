from django.apps import AppConfig


class ClmConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clm'
    verbose_name = 'Contract Lifecycle Management'
