"""API de tracking de dispositivos: telemetría firmada, diagnósticos y sesiones."""
