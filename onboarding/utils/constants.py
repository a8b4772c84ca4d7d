"""
onboarding/utils/constants.py

Purpose: Centralized static content

- Default welcome and rules templates (Spanish)
- Message catalog and button labels used by the bot layer
- Reminder and config limits

(Prevents hardcoding across the codebase)
"""

from datetime import timedelta

# ============================================================
# DEFAULT TEMPLATES
# ============================================================

DEFAULT_WELCOME_MESSAGE = """¡Bienvenido/a al servidor! 👋

¡Nos alegra tenerte aquí! Para comenzar, necesitas:

1. 📋 Leer y aceptar las reglas del servidor
2. 🔗 Conectar tu cuenta de GitHub (opcional)
3. 📚 Completar un breve tutorial

Usa `/help` para ver todos los comandos disponibles.
¡Esperamos que disfrutes tu tiempo aquí!"""

DEFAULT_RULES_CONTENT = """📋 **Reglas del Servidor**

**1. Respeto y Cortesía**
- Trata a todos los miembros con respeto
- No se toleran insultos, acoso o discriminación

**2. Contenido Apropiado**
- Mantén las conversaciones apropiadas para todos
- No spam ni contenido irrelevante

**3. Canales Temáticos**
- Usa los canales apropiados para cada tema
- Mantén las discusiones organizadas

**4. Código de Conducta para Desarrolladores**
- Comparte código de manera constructiva
- Ayuda a otros desarrolladores cuando sea posible
- Respeta las diferentes tecnologías y enfoques

**5. Privacidad y Seguridad**
- No compartas información personal
- No publiques credenciales o tokens

Al hacer clic en "Acepto", confirmas que has leído y aceptas estas reglas."""

# ============================================================
# MESSAGE CATALOG
# ============================================================

ONBOARDING_MESSAGES = {
    "WELCOME": "¡Bienvenido/a al servidor! 👋",
    "RULES_PROMPT": "Por favor, lee y acepta las reglas del servidor:",
    "RULES_ACCEPTED": "¡Gracias por aceptar las reglas! ✅",
    "GITHUB_OFFER": "¿Te gustaría conectar tu cuenta de GitHub? (Opcional)",
    "GITHUB_CONNECTED": "¡GitHub conectado exitosamente! 🔗",
    "GITHUB_SKIPPED": "GitHub omitido. Puedes conectarlo más tarde con `/github-connect`",
    "TUTORIAL_START": "¡Comencemos con un breve tutorial! 📚",
    "TUTORIAL_COMPLETE": "¡Tutorial completado! 🎓",
    "ONBOARDING_COMPLETE": "¡Onboarding completado! ¡Disfruta del servidor! 🎉",
    "REMINDER_RULES": "👋 ¡Hola! Aún necesitas aceptar las reglas del servidor para acceder a todos los canales.",
    "ERROR_DM_FAILED": "No pude enviarte un mensaje directo. Te enviaré la información aquí.",
    # Buttons
    "BUTTON_ACCEPT_RULES": "Acepto las Reglas",
    "BUTTON_CONNECT_GITHUB": "Conectar GitHub",
    "BUTTON_SKIP_GITHUB": "Omitir por Ahora",
    "BUTTON_START_TUTORIAL": "Comenzar Tutorial",
    "BUTTON_SKIP_TUTORIAL": "Omitir Tutorial",
}

# ============================================================
# VALIDATION MESSAGES
# ============================================================

ERROR_GUILD_ID_REQUIRED = "Guild ID es requerido"
ERROR_REMINDER_INTERVAL_RANGE = "Intervalo de recordatorios debe estar entre 1 y 168 horas"
ERROR_MAX_REMINDERS_RANGE = "Máximo de recordatorios debe estar entre 0 y 10"
ERROR_WELCOME_MESSAGE_EMPTY = "Mensaje de bienvenida no puede estar vacío"
ERROR_RULES_CONTENT_EMPTY = "Contenido de reglas no puede estar vacío"

# ============================================================
# LIMITS
# ============================================================

DEFAULT_REMINDER_INTERVAL_HOURS = 24
MIN_REMINDER_INTERVAL_HOURS = 1
MAX_REMINDER_INTERVAL_HOURS = 168  # one week

DEFAULT_MAX_REMINDERS = 3
MIN_MAX_REMINDERS = 0
MAX_MAX_REMINDERS = 10

# Idle time before a user with unaccepted rules becomes eligible for a reminder.
# Independent of OnboardingConfig.reminder_interval_hours.
REMINDER_THRESHOLD = timedelta(hours=24)
