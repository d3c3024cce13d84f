from .floors import Floor
from .room_classes import RoomClass
from .rooms import Room
from .customers import Customer
from .reservations import Reservation
