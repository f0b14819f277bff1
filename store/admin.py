from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html

from .models import Category, Order, OrderItem, Payment, Product, ProductImage, Review, User

admin.site.register(Category)
admin.site.register(Review)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'first_name', 'role', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Store', {'fields': ('role', 'phone')}),
    )


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0
    fields = ('image', 'alt_text', 'preview_image')
    readonly_fields = ('preview_image',)

    def preview_image(self, obj):
        if obj.image:
            return format_html('<img src="{}" width="80" style="border-radius:8px;" />', obj.image.url)
        return "No Image"
    preview_image.short_description = "Preview"


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('name', 'price', 'stock', 'track_stock', 'category', 'seller', 'created_at')
    list_filter = ('category', 'track_stock')
    search_fields = ('name', 'description')
    inlines = [ProductImageInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'product_name', 'quantity', 'price')
    can_delete = False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ('processor_payment_id', 'method', 'amount', 'currency', 'status', 'created_at')
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'first_name', 'last_name', 'email', 'total_amount', 'status', 'created_at')
    list_filter = ('status', 'shipping_method', 'created_at')
    search_fields = ('first_name', 'last_name', 'email', 'id')
    # Snapshot fields are history; only the status moves.
    readonly_fields = (
        'user', 'total_amount', 'first_name', 'last_name', 'email', 'phone',
        'street_address', 'city', 'state', 'zip', 'country',
        'shipping_method', 'shipping_cost', 'created_at', 'updated_at',
    )
    inlines = [OrderItemInline, PaymentInline]

    actions = ['mark_as_paid', 'mark_as_shipped', 'mark_as_delivered']

    def mark_as_paid(self, request, queryset):
        queryset.filter(status=Order.STATUS_PENDING).update(status=Order.STATUS_PAID)
    mark_as_paid.short_description = "Mark as Payment Confirmed"

    def mark_as_shipped(self, request, queryset):
        queryset.filter(status__in=[Order.STATUS_PENDING, Order.STATUS_PAID]).update(status=Order.STATUS_SHIPPED)
    mark_as_shipped.short_description = "Mark as Shipped"

    def mark_as_delivered(self, request, queryset):
        queryset.filter(status=Order.STATUS_SHIPPED).update(status=Order.STATUS_DELIVERED)
    mark_as_delivered.short_description = "Mark as Delivered"


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('processor_payment_id', 'order', 'method', 'amount', 'currency', 'status', 'created_at')
    list_filter = ('method', 'status', 'currency')
    search_fields = ('processor_payment_id', 'order__id')
    readonly_fields = ('created_at', 'updated_at')
