from filevault.config.config_settings.config_manager import get_app_config

settings = get_app_config()
