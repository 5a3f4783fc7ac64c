"""Enumerations shared across orders, quotes, fleet and pricing."""

from django.db import models


class VehicleType(models.TextChoices):
    VAN          = "VAN",          "Van"
    T3           = "T3",           "Truck 3t"
    T5           = "T5",           "Truck 5t"
    T10          = "T10",          "Truck 10t"
    T20          = "T20",          "Truck 20t"
    T35          = "T35",          "Truck 35t"
    TRAILER      = "TRAILER",      "Trailer"
    SEMI_TRAILER = "SEMI_TRAILER", "Semi-trailer"
    DUMP         = "DUMP",         "Dump truck"
    TANKER       = "TANKER",       "Tanker"


class GoodsType(models.TextChoices):
    GENERAL      = "GENERAL",      "General cargo"
    FOOD         = "FOOD",         "Food products"
    CONSTRUCTION = "CONSTRUCTION", "Construction materials"
    HAZMAT       = "HAZMAT",       "Dangerous goods"
    LIQUID       = "LIQUID",       "Liquids"
    CHEMICAL     = "CHEMICAL",     "Chemicals"
    VEHICLES     = "VEHICLES",     "Vehicles"
    LIVESTOCK    = "LIVESTOCK",    "Livestock"
    EQUIPMENT    = "EQUIPMENT",    "Equipment"
    FURNITURE    = "FURNITURE",    "Furniture"
    TEXTILES     = "TEXTILES",     "Textiles"


class Priority(models.TextChoices):
    LOW    = "LOW",    "Low"
    NORMAL = "NORMAL", "Normal"
    HIGH   = "HIGH",   "High"
    URGENT = "URGENT", "Urgent"


class SpecialRequirement(models.TextChoices):
    FRAGILE           = "FRAGILE",           "Fragile"
    REFRIGERATED      = "REFRIGERATED",      "Refrigerated"
    URGENT            = "URGENT",            "Urgent"
    SECURE            = "SECURE",            "Secure"
    DELICATE_HANDLING = "DELICATE_HANDLING", "Delicate handling"
    LOADING_UNLOADING = "LOADING_UNLOADING", "Loading / unloading"
    SPECIAL_PACKAGING = "SPECIAL_PACKAGING", "Special packaging"


# (capacity in tons, volume in m³) per vehicle type
VEHICLE_CAPACITIES = {
    VehicleType.VAN:          (2,  12),
    VehicleType.T3:           (3,  15),
    VehicleType.T5:           (5,  25),
    VehicleType.T10:          (10, 50),
    VehicleType.T20:          (20, 100),
    VehicleType.T35:          (35, 175),
    VehicleType.TRAILER:      (40, 200),
    VehicleType.SEMI_TRAILER: (44, 220),
    VehicleType.DUMP:         (15, 30),
    VehicleType.TANKER:       (25, 25),
}
