"""View and input models."""

from dataclasses import dataclass
from datetime import datetime

from okapi.binding import Err, Ok, validator
from okapi.handlers import bad_request


@dataclass(frozen=True, slots=True)
class Person:
    name: str


@dataclass(frozen=True, slots=True)
class Car:
    name: str = ""
    make: str = ""
    wheels: int = 0
    built: datetime | None = None


@validator(Car)
def check_wheels(car: Car) -> Ok[Car] | Err:
    if 1 < car.wheels <= 6:
        return Ok(car)
    return Err(bad_request("Wheels must be a value between 2 and 6."))
