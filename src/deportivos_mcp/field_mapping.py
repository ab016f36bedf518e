"""Translation between model field names and backend column names.

Every gateway read goes through ``from_persistence`` and every write through
``to_persistence``. Nothing else in the package spells backend column names.
"""

from typing import Any

_PERSON_FIELDS = {
    "ci": "ci",
    "name": "nombre",
    "surname": "apellido",
    "phone": "telefono",
    "birth_date": "fechanaci",
    "sex": "sexo",
    "nationality": "nacionalidad",
}

FIELD_MAPS: dict[str, dict[str, str]] = {
    "reservation": {
        "code": "cod_reserva",
        "client_id": "ci_cliente",
        "employee_id": "ci_empleado",
        "court_code": "cod_cancha",
        "discipline_code": "cod_disciplina",
        "date": "fecha",
        "start_time": "hora_inicio",
        "end_time": "hora_fin",
        "total_amount": "monto_total",
        "status": "estado_reserva",
        "space_code": "cod_espacio",
        "client_name": "cliente_nombre",
        "client_surname": "cliente_apellido",
        "space_name": "espacio_nombre",
    },
    "space": {
        "code": "cod_espacio",
        "name": "nombre",
        "location": "ubicacion",
        "capacity": "capacidad",
        "status": "estado",
        "description": "descripcion",
        "court_count": "nro_canchas",
        "reservation_count": "nro_reservas",
        "total_paid": "total_pago",
    },
    "court": {
        "code": "cod_cancha",
        "space_code": "cod_espacio",
        "name": "nombre",
        "surface": "tipo_superficie",
        "covered": "techada",
    },
    "discipline": {
        "code": "cod_disciplina",
        "name": "nombre",
    },
    "client": {**_PERSON_FIELDS, "category": "categoria", "email": "email"},
    "employee": dict(_PERSON_FIELDS),
}

# Columns accepted by the backend on create/update
WRITABLE_FIELDS: dict[str, tuple[str, ...]] = {
    "reservation": (
        "code",
        "client_id",
        "employee_id",
        "court_code",
        "discipline_code",
        "date",
        "start_time",
        "end_time",
        "total_amount",
        "status",
    ),
    "space": ("code", "name", "location", "capacity", "status", "description"),
    "client": tuple(FIELD_MAPS["client"]),
}

_REVERSE_MAPS = {
    entity: {column: field for field, column in mapping.items()}
    for entity, mapping in FIELD_MAPS.items()
}


def _mapping(entity: str) -> dict[str, str]:
    try:
        return FIELD_MAPS[entity]
    except KeyError:
        raise ValueError(f"Unknown entity for field mapping: {entity}") from None


def to_persistence(entity: str, data: dict[str, Any]) -> dict[str, Any]:
    """Map model field names to backend column names for a write.

    Fields that are not writable for the entity and values that are None are
    left out of the payload.

    Args:
        entity: Entity name, one of FIELD_MAPS keys
        data: Values keyed by model field name

    Returns:
        Values keyed by backend column name
    """
    mapping = _mapping(entity)
    writable = WRITABLE_FIELDS.get(entity, tuple(mapping))
    payload = {}
    for field in writable:
        value = data.get(field)
        if value is None:
            continue
        payload[mapping[field]] = value
    return payload


def from_persistence(entity: str, record: dict[str, Any]) -> dict[str, Any]:
    """Map a backend record to model field names. Unknown columns are dropped.

    Args:
        entity: Entity name, one of FIELD_MAPS keys
        record: Row as returned by the backend

    Returns:
        Values keyed by model field name
    """
    _mapping(entity)
    reverse = _REVERSE_MAPS[entity]
    return {reverse[column]: value for column, value in record.items() if column in reverse}
