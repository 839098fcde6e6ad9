"""
Travel Booking API -- Localized response messages
Supports: pt-BR (default), en-US, es
Use  t(code, lang)  for single strings.
Dynamic values use {placeholders} -- pass as kwargs to t().
"""

from typing import Dict


def t(key: str, lang: str = "pt-BR", **kwargs) -> str:
    """Return translated string, falling back to Portuguese, then to the key."""
    entry = _T.get(key, {})
    text = entry.get(lang) or entry.get("pt-BR", key)
    if kwargs:
        try:
            text = text.format(**kwargs)
        except (KeyError, IndexError):
            pass
    return text


# ---------------------------------------------------------------------------
# Response codes
# ---------------------------------------------------------------------------
_T: Dict[str, Dict[str, str]] = {
    # ---- Router ----
    "E001": {
        "pt-BR": "Método não permitido. Utilize POST.",
        "en-US": "Method not allowed. Use POST.",
        "es": "Método no permitido. Utilice POST.",
    },
    "E004": {
        "pt-BR": "Corpo da requisição inválido ou incompleto.",
        "en-US": "Request body is invalid or incomplete.",
        "es": "Cuerpo de la solicitud inválido o incompleto.",
    },
    "E006": {
        "pt-BR": "Erro ao processar a requisição.",
        "en-US": "Error while processing the request.",
        "es": "Error al procesar la solicitud.",
    },
    "E007": {
        "pt-BR": "Serviço temporariamente indisponível.",
        "en-US": "Service temporarily unavailable.",
        "es": "Servicio temporalmente no disponible.",
    },
    # ---- Reservation ----
    "E107": {
        "pt-BR": "Erro interno ao processar a reserva.",
        "en-US": "Internal error while processing the reservation.",
        "es": "Error interno al procesar la reserva.",
    },
    "E110": {
        "pt-BR": "A data de início não pode estar no passado.",
        "en-US": "Start date cannot be in the past.",
        "es": "La fecha de inicio no puede estar en el pasado.",
    },
    "E111": {
        "pt-BR": "A data de fim deve ser posterior à data de início.",
        "en-US": "End date must be after start date.",
        "es": "La fecha de fin debe ser posterior a la fecha de inicio.",
    },
    "E112": {
        "pt-BR": "O identificador da reserva é obrigatório.",
        "en-US": "Reservation identifier is required.",
        "es": "El identificador de la reserva es obligatorio.",
    },
    "E113": {
        "pt-BR": "O período da reserva é obrigatório.",
        "en-US": "Reservation period is required.",
        "es": "El período de la reserva es obligatorio.",
    },
    "E114": {
        "pt-BR": "Data inválida.",
        "en-US": "Invalid date.",
        "es": "Fecha inválida.",
    },
    "E115": {
        "pt-BR": "Reserva já existente.",
        "en-US": "Reservation already exists.",
        "es": "La reserva ya existe.",
    },
    "E116": {
        "pt-BR": "Falha ao gravar a reserva.",
        "en-US": "Failed to write the reservation.",
        "es": "Error al grabar la reserva.",
    },
    "E117": {
        "pt-BR": "Reserva não encontrada.",
        "en-US": "Reservation not found.",
        "es": "Reserva no encontrada.",
    },
    "E118": {
        "pt-BR": "Falha ao recuperar a reserva gravada.",
        "en-US": "Failed to read back the stored reservation.",
        "es": "Error al recuperar la reserva grabada.",
    },
    "E119": {
        "pt-BR": "Falha ao modificar serviço.",
        "en-US": "Failed to modify service.",
        "es": "Error al modificar el servicio.",
    },
    "E120": {
        "pt-BR": "A reserva não contém serviços.",
        "en-US": "The booking contains no services.",
        "es": "La reserva no contiene servicios.",
    },
    "E121": {
        "pt-BR": "Dados do passageiro principal incompletos.",
        "en-US": "Main passenger data is incomplete.",
        "es": "Datos del pasajero principal incompletos.",
    },
    # ---- Services ----
    "E122": {
        "pt-BR": "Falha ao criar serviço.",
        "en-US": "Failed to create service.",
        "es": "Error al crear el servicio.",
    },
    "E123": {
        "pt-BR": "O período do serviço é obrigatório.",
        "en-US": "Service period is required.",
        "es": "El período del servicio es obligatorio.",
    },
    "E124": {
        "pt-BR": "Fornecedor é obrigatório.",
        "en-US": "Supplier is required.",
        "es": "El proveedor es obligatorio.",
    },
    "E125": {
        "pt-BR": "Informações de ocupação são obrigatórias.",
        "en-US": "Occupancy information is required.",
        "es": "La información de ocupación es obligatoria.",
    },
    "E126": {
        "pt-BR": "A reserva está cancelada.",
        "en-US": "The reservation is cancelled.",
        "es": "La reserva está cancelada.",
    },
    "E127": {
        "pt-BR": "Falha ao gravar o serviço.",
        "en-US": "Failed to write the service.",
        "es": "Error al grabar el servicio.",
    },
    "E128": {
        "pt-BR": "Serviço já existente nesta reserva.",
        "en-US": "Service already exists in this reservation.",
        "es": "El servicio ya existe en esta reserva.",
    },
    "E129": {
        "pt-BR": "O identificador do serviço é obrigatório.",
        "en-US": "Service identifier is required.",
        "es": "El identificador del servicio es obligatorio.",
    },
    "E131": {
        "pt-BR": "Serviço não encontrado.",
        "en-US": "Service not found.",
        "es": "Servicio no encontrado.",
    },
    "E133": {
        "pt-BR": "Nenhum dado para atualizar foi fornecido.",
        "en-US": "No reservation data to update was provided.",
        "es": "No se proporcionaron datos para actualizar.",
    },
    "E134": {
        "pt-BR": "Nenhuma reserva foi atualizada.",
        "en-US": "No reservation was updated.",
        "es": "Ninguna reserva fue actualizada.",
    },
    "E138": {
        "pt-BR": "Nenhum dado de serviço para atualizar foi fornecido.",
        "en-US": "No service data to update was provided.",
        "es": "No se proporcionaron datos de servicio para actualizar.",
    },
    "E139": {
        "pt-BR": "Nenhum serviço foi atualizado.",
        "en-US": "No service was updated.",
        "es": "Ningún servicio fue actualizado.",
    },
    "E140": {
        "pt-BR": "Serviço não encontrado no índice informado.",
        "en-US": "Service not found at the given index.",
        "es": "Servicio no encontrado en el índice indicado.",
    },
    "E142": {
        "pt-BR": "O transfer deve conter ao menos um stopover.",
        "en-US": "A transfer must contain at least one stopover.",
        "es": "El traslado debe contener al menos una parada.",
    },
    "E143": {
        "pt-BR": "Dados de stopover inválidos.",
        "en-US": "Invalid stopover data.",
        "es": "Datos de parada inválidos.",
    },
    "E144": {
        "pt-BR": "Falha ao gravar stopover.",
        "en-US": "Failed to write stopover.",
        "es": "Error al grabar la parada.",
    },
    # ---- Success ----
    "S121": {
        "pt-BR": "Reserva criada com sucesso.",
        "en-US": "Reservation created successfully.",
        "es": "Reserva creada con éxito.",
    },
    "S122": {
        "pt-BR": "Serviço gravado com sucesso.",
        "en-US": "Service stored successfully.",
        "es": "Servicio grabado con éxito.",
    },
    "S123": {
        "pt-BR": "Reserva modificada.",
        "en-US": "Reservation modified.",
        "es": "Reserva modificada.",
    },
    "S124": {
        "pt-BR": "Reserva modificada com algumas falhas.",
        "en-US": "Reservation modified with some failures.",
        "es": "Reserva modificada con algunos errores.",
    },
    "S125": {
        "pt-BR": "Reserva modificada com sucesso.",
        "en-US": "Reservation modified successfully.",
        "es": "Reserva modificada con éxito.",
    },
    "S126": {
        "pt-BR": "Reserva criada com falhas em alguns serviços.",
        "en-US": "Reservation created with some failed services.",
        "es": "Reserva creada con errores en algunos servicios.",
    },
    "S130": {
        "pt-BR": "Transfer criado com {count} stopovers.",
        "en-US": "Transfer created with {count} stopovers.",
        "es": "Traslado creado con {count} paradas.",
    },
}

_TRANSLATIONS = _T
