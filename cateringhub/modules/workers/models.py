# Supabase table: worker_profiles
# Workers who are scheduled on shifts but have no login account.

"""
Expected Supabase table structure:
- id: uuid (primary key)
- provider_id: uuid (foreign key to providers.id, not null)
- team_id: uuid (foreign key to teams.id, nullable)
- name: text (not null)
- phone: text (nullable)
- role: text (nullable) - free-form job title, e.g. "Server", "Cook"
- tags: text[] (default: '{}')
- certifications: text[] (default: '{}')
- hourly_rate: numeric (nullable, >= 0)
- availability: jsonb (nullable)
- notes: text (nullable)
- status: text (not null, default: 'active') - values: active, inactive
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
