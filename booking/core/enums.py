from enum import Enum


class TripMode(str, Enum):
    TRANSFER = "transfer"
    DAILY_RENTAL = "daily_rental"

    def __str__(self):
        return self.value


class TripDirection(str, Enum):
    ONE_WAY = "one_way"
    ROUND_TRIP = "round_trip"

    def __str__(self):
        return self.value


class RentalType(str, Enum):
    HALF_DAY = "Half Day"
    FULL_DAY = "Full Day"
    MULTI_DAY = "Multi-Day"

    def __str__(self):
        return self.value


class TierKind(str, Enum):
    DISTANCE = "distance"
    HALF_DAY = "half_day"
    FULL_DAY = "full_day"

    def __str__(self):
        return self.value


class SortOption(str, Enum):
    PRICE = "price"
    RATING = "rating"
    PASSENGERS = "passengers"

    def __str__(self):
        return self.value
