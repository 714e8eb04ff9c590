# Supabase tables behind the provider profile
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py and gallery.py

"""
providers:
- id: uuid (primary key)
- business_name, contact_person_name, mobile_number, email: text
- description, tagline: text (nullable)
- logo_url, banner_image, featured_image_url: text (nullable)
- is_visible: boolean (nullable)
- max_service_radius: numeric (nullable, km)
- daily_capacity: integer (nullable)
- advance_booking_days: integer (nullable)
- available_days: text[] (nullable) - e.g. {monday, tuesday}
- social_media_links: jsonb (nullable)
- created_at, updated_at: timestamp

service_locations:
- id: uuid (primary key)
- provider_id: uuid (not null)
- province, city, barangay: text (not null)
- street_address, postal_code, landmark, service_area_notes: text (nullable)
- is_primary: boolean (exactly one per provider)
- service_radius: numeric (nullable, km) - trigger rejects values above providers.max_service_radius
- created_at, updated_at: timestamp

provider_social_links:
- id: uuid (primary key)
- provider_id: uuid (not null)
- platform: text - values: facebook, instagram, website, tiktok; unique (provider_id, platform)
- url: text (https)
- created_at, updated_at: timestamp

provider_gallery_images:
- id: uuid (primary key)
- provider_id: uuid (not null)
- image_url: text (public URL in the provider-assets bucket)
- storage_path: text - gallery/{provider_id}/{uuid}.{ext}
- caption: text (nullable)
- display_order: integer (0-based)
- created_at: timestamp
"""
