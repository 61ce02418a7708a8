from shopcart.data.models import ProductModel, UserModel, UserRole
from shopcart.data.seed import PRODUCTS, seed


def test_seed_creates_admin_and_products_once(db):
    seed(admin_password="admin-pass")
    seed(admin_password="admin-pass")

    admin = db.query(UserModel).filter_by(username="admin").one()
    assert admin.role == UserRole.ADMIN.value
    assert db.query(ProductModel).count() == len(PRODUCTS)
