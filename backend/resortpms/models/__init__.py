# Ontology Models
from resortpms.models.ontology import Reservation, ReservationStatus, ReservationType

__all__ = ['Reservation', 'ReservationStatus', 'ReservationType']
