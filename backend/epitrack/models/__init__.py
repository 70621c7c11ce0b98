from epitrack.models.company import Company
from epitrack.models.user import User, Role, AuthCompany
from epitrack.models.collaborator import Collaborator
from epitrack.models.epi import Epi
from epitrack.models.process import Process, ProcessEpi
from epitrack.models.movement import EpiMovement
from epitrack.models.log import Log
from epitrack.models.biometria import Biometria

__all__ = [
    "Company", "User", "Role", "AuthCompany", "Collaborator", "Epi",
    "Process", "ProcessEpi", "EpiMovement", "Log", "Biometria",
]
