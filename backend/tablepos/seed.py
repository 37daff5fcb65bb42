# Overview: Default floor plan and menu used by `flask system init`.

from __future__ import annotations

from .extensions import db
from .models import DiningTable, Product, TABLE_AVAILABLE

# (section, table count, name prefix)
DEFAULT_SECTIONS = [
    ("Alt Kat", 20, "A"),
    ("Bahçe", 15, "B"),
    ("2. Kat", 15, "K2"),
    ("Teras", 10, "T"),
]

# category -> (base price, tracked stock or None for unlimited, items)
DEFAULT_MENU = {
    "Başlangıçlar": (120, None, [
        "Çorba", "Bruschetta", "Karides Güveç", "Paçanga Böreği", "Haydari",
        "Humus", "Atom", "Girit Ezme", "Şakşuka", "Fava",
        "Mantar Dolma", "Sigara Böreği", "Kalamar Tava", "Ahtapot Salatası", "Patlıcan Ezme",
        "Gavurdağı Salata", "Mevsim Salata", "Çoban Salata", "Peynir Tabağı", "Söğüş Tabağı",
    ]),
    "Ana Yemekler": (350, None, [
        "Izgara Köfte", "Kuzu Şiş", "Dana Antrikot", "Tavuk Şiş", "Adana Kebap",
        "Urfa Kebap", "Ali Nazik", "Hünkar Beğendi", "Karışık Izgara", "Beyti Sarma",
        "Çökertme Kebabı", "Sac Kavurma", "Kuzu Pirzola", "Dana Bonfile", "Tavuk Kanat",
        "Tavuk Pirzola", "Levrek Izgara", "Çupra Izgara", "Somon Izgara", "Kiremitte Köfte",
    ]),
    "İçecekler": (40, 100, [
        "Kola", "Fanta", "Sprite", "Ice Tea", "Şalgam",
        "Ayran", "Su", "Soda", "Meyve Suyu", "Limonata",
        "Taze Portakal Suyu", "Türk Kahvesi", "Çay", "Bitki Çayı", "Espresso",
        "Latte", "Cappuccino", "Americano", "Filtre Kahve", "Sıcak Çikolata",
    ]),
    "Tatlılar": (150, None, [
        "Künefe", "Katmer", "Sütlaç", "Kazandibi", "Baklava",
        "Şöbiyet", "Fıstıklı Sarma", "Trileçe", "Cheesecake", "Tiramisu",
        "Profiterol", "Magnolia", "Dondurma", "Meyve Tabağı", "Kabak Tatlısı",
        "Ayva Tatlısı", "İrmik Helvası", "Revani", "Şekerpare", "Kemalpaşa",
    ]),
    "Alkollü İçecekler": (250, 24, [
        "Rakı 35cl", "Rakı 50cl", "Rakı 70cl", "Rakı 100cl", "Bira 33cl",
        "Bira 50cl", "Şarap Kadeh", "Şarap Şişe", "Votka Kadeh", "Votka Şişe",
        "Cin Tonik", "Viski Kadeh", "Viski Şişe", "Tekila Shot", "Kokteyl 1",
        "Kokteyl 2", "Kokteyl 3", "Likör", "Konyak", "Şampanya",
    ]),
}


def seed_tables() -> int:
    """Create the default floor plan when no tables exist. Returns rows created."""
    if db.session.query(DiningTable.id).first() is not None:
        return 0

    created = 0
    for section, count, prefix in DEFAULT_SECTIONS:
        for i in range(1, count + 1):
            db.session.add(DiningTable(name=f"{prefix} {i}", section=section, status=TABLE_AVAILABLE))
            created += 1
    db.session.commit()
    return created


def seed_menu() -> int:
    """Create the default menu when the catalog is empty. Returns rows created."""
    if db.session.query(Product.id).first() is not None:
        return 0

    created = 0
    for category, (base_price, stock, items) in DEFAULT_MENU.items():
        for index, name in enumerate(items):
            db.session.add(Product(
                name=name,
                category=category,
                description=f"Lezzetli {name} sunumu",
                price=base_price + index * 5,
                stock=stock or 0,
                is_unlimited=stock is None,
            ))
            created += 1
    db.session.commit()
    return created
