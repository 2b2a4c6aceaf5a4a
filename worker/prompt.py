# ============================================================================
# TASK DESCRIPTOR
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Fixed inference prompt
# PURPOSE: The instruction sent with every video to the inference model
# CREATED: 19 OCT 2026
# ============================================================================
"""
Fixed task descriptor for video description.

The model must answer with one JSON object whose values are in Spanish.
Absent features are the boolean false, never a placeholder string.
"""

DESCRIPTION_FIELDS = (
    "texto_visible",
    "musica_fondo",
    "objetos_presentes",
    "personas",
    "acciones",
    "colores_predominantes",
    "ambiente_contexto",
    "dialogo_narracion",
    "duracion_segundos",
    "duracion_formato",
)

VIDEO_DESCRIPTION_PROMPT = """Analiza este video y responde con un único objeto JSON con exactamente esta estructura:
{
  "texto_visible": transcripción completa de todo el texto que aparece en pantalla (títulos, subtítulos, números, listas), en orden de aparición y separado por saltos de línea, o false si no hay texto,
  "musica_fondo": descripción de la música y su género, o false si no hay música,
  "objetos_presentes": descripción de los objetos relevantes, o false si no hay,
  "personas": descripción general de las personas, o false si no aparecen,
  "acciones": descripción de las acciones, o false si no hay,
  "colores_predominantes": descripción de los colores principales (siempre con valor),
  "ambiente_contexto": descripción del ambiente y el contexto (siempre con valor),
  "dialogo_narracion": transcripción literal, palabra por palabra, de todo lo que se dice, incluyendo muletillas y repeticiones, o false si no hay audio hablado,
  "duracion_segundos": número entero con la duración aproximada en segundos,
  "duracion_formato": duración legible, MM:SS por debajo de una hora o HH:MM:SS a partir de una hora
}

Reglas:
- Responde solo con el JSON, sin texto adicional ni bloques de código.
- Usa el booleano false cuando algo no esté presente, nunca frases como "No se detecta".
- No resumas ni parafrasees el texto visible ni el diálogo; transcríbelos completos y mantén la numeración de las listas.
- colores_predominantes, ambiente_contexto, duracion_segundos y duracion_formato siempre deben tener valor.
- Todas las descripciones deben estar en español."""


__all__ = ["DESCRIPTION_FIELDS", "VIDEO_DESCRIPTION_PROMPT"]
