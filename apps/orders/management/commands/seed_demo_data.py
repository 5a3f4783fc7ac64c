"""
Management command: seed a demo shipper, carriers, vehicles and addresses.

Usage:
    python manage.py seed_demo_data
"""

from decimal import Decimal
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.accounts.models import Account, CarrierProfile, ShipperProfile, Address
from apps.fleet.models import Vehicle

DEMO_PASSWORD = "Demo@12345"

ADDRESSES = [
    ("Port autonome", "Boulevard de la Libération", "Dakar",       "Dakar",       14.6813, -17.4247),
    ("Entrepôt Thiès", "Route de Dakar",            "Thiès",       "Thiès",       14.7910, -16.9359),
    ("Dépôt Nord",     "Avenue Jean Mermoz",        "Saint-Louis", "Saint-Louis", 16.0179, -16.4896),
    ("Marché central", "Route nationale 1",         "Kaolack",     "Kaolack",     14.1652, -16.0726),
]

CARRIERS = [
    # phone, name, company, license, verified
    ("+221770000101", "Moussa Diop",  "Diop Transports",     "SN-TR-0101", True),
    ("+221770000102", "Awa Ndiaye",   "Ndiaye Logistique",   "SN-TR-0102", True),
    ("+221770000103", "Ibrahima Fall","Fall Fret",           "SN-TR-0103", False),
]

VEHICLES = {
    # license -> [(type, plate, capacity_tons, volume_m3, daily_rate)]
    "SN-TR-0101": [("T5",  "DK-1010-A", "5",  "25",  "60000"), ("T10", "DK-1011-A", "10", "50", "90000")],
    "SN-TR-0102": [("T20", "TH-2020-B", "20", "100", "140000")],
    "SN-TR-0103": [("VAN", "SL-3030-C", "2",  "12",  "35000")],
}


class Command(BaseCommand):
    help = "Seed demo accounts, addresses and vehicles"

    @transaction.atomic
    def handle(self, *args, **options):
        shipper, created = Account.objects.get_or_create(
            phone="+221770000001",
            defaults={"full_name": "Fatou Sow", "role": Account.Role.SHIPPER},
        )
        if created:
            shipper.set_password(DEMO_PASSWORD)
            shipper.save()
            ShipperProfile.objects.create(account=shipper, company_name="Sow Import-Export")

        created_addresses = 0
        for label, street, city, region, lat, lng in ADDRESSES:
            _, created = Address.objects.get_or_create(
                owner=shipper, label=label,
                defaults={"street": street, "city": city, "region": region, "latitude": lat, "longitude": lng},
            )
            if created:
                created_addresses += 1

        created_vehicles = 0
        for phone, name, company, license_number, verified in CARRIERS:
            carrier, created = Account.objects.get_or_create(
                phone=phone, defaults={"full_name": name, "role": Account.Role.CARRIER},
            )
            if created:
                carrier.set_password(DEMO_PASSWORD)
                carrier.save()
                CarrierProfile.objects.create(
                    account=carrier, company_name=company, license_number=license_number,
                    is_verified=verified, is_online=True, service_regions=["Dakar", "Thiès"],
                )
            for vehicle_type, plate, tons, volume, rate in VEHICLES[license_number]:
                _, created = Vehicle.objects.get_or_create(
                    plate_number=plate,
                    defaults={
                        "carrier":       carrier,
                        "vehicle_type":  vehicle_type,
                        "capacity_tons": Decimal(tons),
                        "volume_m3":     Decimal(volume),
                        "daily_rate":    Decimal(rate),
                    },
                )
                if created:
                    created_vehicles += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {created_addresses} addresses and {created_vehicles} vehicles "
            f"(password for demo accounts: {DEMO_PASSWORD})."
        ))
