import enum


class IntentCode(str, enum.Enum):
    RDV = "RDV"
    INFO = "INFO"
    URGENCE = "URGENCE"
    ANNULATION = "ANNULATION"
    CONSULTATION = "CONSULTATION"

    @property
    def display(self) -> str:
        return INTENT_DISPLAY[self]


INTENT_DISPLAY = {
    IntentCode.RDV: "prise de rdv",
    IntentCode.INFO: "info",
    IntentCode.URGENCE: "urgence",
    IntentCode.ANNULATION: "annulation",
    IntentCode.CONSULTATION: "consultation",
}


class CallStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    MISSED = "MISSED"


class EndReason(str, enum.Enum):
    HANGUP = "hangup"
    TRANSFER = "transfer"
    ERROR_LOGIC = "error_logic"
    ERROR_TIMEOUT = "error_timeout"


class TransferReason(str, enum.Enum):
    REDIRECT = "redirect"
    ERROR = "error"
    EXAM_TYPE = "exam_type"
    EXAM_MULT = "exam_mult"
    EXAM_INTERV = "exam_interv"
    EMERGENCY = "emergency"
    DOCTOR = "doctor"
    ADMIN = "admin"
    RESULT = "result"
    INCIDENT = "incident"
    IDENTIFICATION = "identification"


TRANSFER_LABELS = {
    TransferReason.REDIRECT: "Redirection demandée",
    TransferReason.ERROR: "Erreur",
    TransferReason.EXAM_TYPE: "Type d'examen non pris en charge",
    TransferReason.EXAM_MULT: "Plusieurs examens demandés",
    TransferReason.EXAM_INTERV: "Demande de radio interventionnelle",
    TransferReason.EMERGENCY: "Urgence",
    TransferReason.DOCTOR: "Professionnel de santé",
    TransferReason.ADMIN: "Démarches administratives",
    TransferReason.RESULT: "Résultats d'examens",
    TransferReason.INCIDENT: "Demande à traiter par un humain",
    TransferReason.IDENTIFICATION: "Problème d'identification",
}


class Category(str, enum.Enum):
    RDV = "rdv"
    RDV_INTENT = "rdv_intent"
    INFO = "info"
    MODIFICATION = "modification"
    ANNULATION = "annulation"
    URGENCE = "urgence"
    AUTRE = "autre"


CATEGORY_LABELS = {
    Category.RDV: "Prise de RDV",
    Category.RDV_INTENT: "Demandes de RDV",
    Category.INFO: "Informations",
    Category.MODIFICATION: "Modifications",
    Category.ANNULATION: "Annulations",
    Category.URGENCE: "Urgences",
    Category.AUTRE: "Autres",
}


class Period(str, enum.Enum):
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"

    @property
    def days(self) -> int:
        return {"24h": 1, "7d": 7, "30d": 30}[self.value]


class OwnerRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
