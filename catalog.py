from typing import List, Optional

from schemas import Product, Role, WeatherInfo

# Static marketplace until listings come from a backend
MARKETPLACE = [
    Product(id="p1", name="Premium Wheat Seeds", category="INPUT", price=500, unit="kg", quantity=100, seller_id="s1",
            image="https://images.unsplash.com/photo-1574323347407-f5e1ad6d020b?auto=format&fit=crop&w=400&q=80"),
    Product(id="p2", name="Nano Urea Fertilizer", category="INPUT", price=1200, unit="bottle", quantity=50, seller_id="s2",
            image="https://images.unsplash.com/photo-1628352081506-83c43123ed6d?auto=format&fit=crop&w=400&q=80"),
    Product(id="p3", name="Fresh Potatoes", category="CROP", price=25, unit="kg", quantity=500, seller_id="f1",
            image="https://images.unsplash.com/photo-1518977676601-b53f82aba655?auto=format&fit=crop&w=400&q=80"),
    Product(id="p4", name="Organic Red Tomatoes", category="CROP", price=40, unit="kg", quantity=300, seller_id="f1",
            image="https://images.unsplash.com/photo-1518977676601-b53f82aba655?auto=format&fit=crop&w=400&q=80"),
]

WEATHER = WeatherInfo(temp=32, condition="Sunny", forecast="Rain expected in 2 days")


class Catalog:
    def __init__(self, products: Optional[List[Product]] = None):
        self._products = tuple(MARKETPLACE if products is None else products)

    def products(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        for p in self._products:
            if p.id == product_id:
                return p
        return None


def visible_to(products: List[Product], role: Optional[Role]) -> List[Product]:
    """Farmers shop for inputs; everyone else browses crops."""
    wanted = "INPUT" if role == "FARMER" else "CROP"
    return [p for p in products if p.category == wanted]
