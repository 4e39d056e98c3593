# backend/dokumen_pajak/errors.py
"""
Jenis-jenis error domain.

Setiap error membawa `code` (string yang stabil untuk klien API),
`status_code` HTTP, dan `details` berisi data terstruktur seperti id atau
nama field yang bermasalah. Handler di `create_app` mengubahnya menjadi
respons JSON.

    DokumenPajakError
    +-- ValidationError            (400)
    +-- NotFoundError              (404)
    +-- ConflictError              (409)
    +-- ReferentialIntegrityError  (409)
"""


class DokumenPajakError(Exception):
    code = "DOKUMEN_PAJAK_ERROR"
    status_code = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class ValidationError(DokumenPajakError):
    """Input tidak valid, ditolak sebelum ada perubahan data."""
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message, field=None, **details):
        if field is not None:
            details["field"] = field
        super().__init__(message, **details)
        self.field = field


class NotFoundError(DokumenPajakError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity, entity_id):
        super().__init__(f"{entity} dengan id {entity_id} tidak ditemukan", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(DokumenPajakError):
    """Pelanggaran keunikan, misalnya transaction_id atau item_code duplikat."""
    code = "CONFLICT"
    status_code = 409

    def __init__(self, message, constraint, value):
        super().__init__(message, constraint=constraint, value=value)
        self.constraint = constraint
        self.value = value


class ReferentialIntegrityError(DokumenPajakError):
    code = "REFERENTIAL_INTEGRITY"
    status_code = 409

    def __init__(self, message, entity_id, reference_count):
        super().__init__(message, id=entity_id, reference_count=reference_count)
        self.entity_id = entity_id
        self.reference_count = reference_count
