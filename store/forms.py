from decimal import Decimal

from django import forms
from django.utils.text import slugify

from .exceptions import InvalidPayload
from .models import Address, Category, Order, Product


def validate(form_class, data, **kwargs):
    """
    Binds ``data`` to ``form_class`` and returns the cleaned data, raising
    InvalidPayload with per-field messages when the form does not validate.
    """
    form = form_class(data=data, **kwargs)
    if not form.is_valid():
        fields = {name: [str(e) for e in errors] for name, errors in form.errors.items()}
        raise InvalidPayload("Invalid request data", fields=fields)
    return form.cleaned_data


def validate_instance(form_class, data, **kwargs):
    """Like validate(), for model forms: returns the unsaved instance."""
    form = form_class(data=data, **kwargs)
    if not form.is_valid():
        fields = {name: [str(e) for e in errors] for name, errors in form.errors.items()}
        raise InvalidPayload("Invalid request data", fields=fields)
    return form.save(commit=False)


# -------------------------------
# Auth
# -------------------------------
class RegisterForm(forms.Form):
    name = forms.CharField(max_length=150)
    email = forms.EmailField()
    password = forms.CharField(min_length=8)
    phone = forms.CharField(max_length=20, required=False)

    def clean_email(self):
        return self.cleaned_data['email'].lower()


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField()

    def clean_email(self):
        return self.cleaned_data['email'].lower()


class RefreshForm(forms.Form):
    refresh_token = forms.CharField()


# -------------------------------
# Addresses / checkout
# -------------------------------
class AddressForm(forms.ModelForm):
    class Meta:
        model = Address
        fields = [
            'first_name', 'last_name', 'email', 'phone',
            'street_address', 'city', 'state', 'zip', 'country',
            'is_default',
        ]


class ContactForm(forms.Form):
    first_name = forms.CharField(max_length=100)
    last_name = forms.CharField(max_length=100)
    email = forms.EmailField()
    phone = forms.CharField(max_length=20, required=False)


class ShippingForm(forms.Form):
    street_address = forms.CharField(max_length=255)
    city = forms.CharField(max_length=100)
    state = forms.CharField(max_length=100)
    zip = forms.CharField(max_length=20)
    country = forms.CharField(max_length=100)


class OrderOptionsForm(forms.Form):
    address_id = forms.UUIDField(required=False)
    shipping_method = forms.ChoiceField(choices=Order.SHIPPING_METHOD_CHOICES, required=False)
    shipping_cost = forms.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.00'), required=False
    )

    def clean_shipping_method(self):
        return self.cleaned_data['shipping_method'] or 'standard'

    def clean_shipping_cost(self):
        cost = self.cleaned_data['shipping_cost']
        return Decimal('0.00') if cost is None else cost


class BuyNowForm(forms.Form):
    product_id = forms.UUIDField()
    quantity = forms.IntegerField(min_value=1, required=False)

    def clean_quantity(self):
        return self.cleaned_data['quantity'] or 1


class PaymentForm(forms.Form):
    processor_payment_id = forms.CharField(max_length=255)
    method = forms.CharField(max_length=50)
    amount = forms.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.00'))
    currency = forms.CharField(min_length=3, max_length=3)
    status = forms.CharField(max_length=50)
    metadata = forms.JSONField(required=False)

    def clean_currency(self):
        return self.cleaned_data['currency'].lower()


class RecordPaymentForm(PaymentForm):
    order_id = forms.UUIDField()


class PaymentIntentForm(forms.Form):
    amount = forms.IntegerField(min_value=1)
    currency = forms.CharField(min_length=3, max_length=3)

    def clean_currency(self):
        return self.cleaned_data['currency'].lower()


# -------------------------------
# Cart / wishlist / reviews
# -------------------------------
class CartItemForm(forms.Form):
    product_id = forms.UUIDField()
    quantity = forms.IntegerField(min_value=1, required=False)

    def clean_quantity(self):
        return self.cleaned_data['quantity'] or 1


class WishlistItemForm(forms.Form):
    product_id = forms.UUIDField()


class ReviewForm(forms.Form):
    product_id = forms.UUIDField()
    rating = forms.IntegerField(min_value=1, max_value=5)
    comment = forms.CharField(required=False)


# -------------------------------
# Catalog
# -------------------------------
class CategoryForm(forms.ModelForm):
    slug = forms.SlugField(max_length=120, required=False)

    class Meta:
        model = Category
        fields = ['name', 'slug', 'description']

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('slug') and cleaned.get('name'):
            cleaned['slug'] = slugify(cleaned['name'])
        return cleaned


class ProductForm(forms.ModelForm):
    class Meta:
        model = Product
        fields = ['name', 'description', 'price', 'stock', 'track_stock', 'category']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['stock'].required = False

    def clean_stock(self):
        stock = self.cleaned_data['stock']
        return self.instance.stock if stock is None else stock

    def clean_track_stock(self):
        # An absent checkbox would otherwise read as False.
        if 'track_stock' not in self.data:
            return self.instance.track_stock
        return self.cleaned_data['track_stock']


class ProductImageForm(forms.Form):
    url = forms.CharField(max_length=255)
    alt_text = forms.CharField(max_length=255, required=False)


class SellerProductsForm(forms.Form):
    seller_id = forms.UUIDField(required=False)


class SearchForm(forms.Form):
    keyword = forms.CharField(required=False)
    category_id = forms.IntegerField(required=False)
    min_price = forms.DecimalField(required=False)
    max_price = forms.DecimalField(required=False)
    stock_min = forms.IntegerField(required=False)
    stock_max = forms.IntegerField(required=False)
