"""
Repositories package — data-access layer.

Each repository file handles all DB operations for one domain concern.
Repositories do NOT handle HTTP concerns or business logic beyond
basic data integrity.

Convention:
    - Module-level functions accept `AsyncSession` as the first argument,
      use `flush()` internally and never commit
    - The store classes (`DossierSelector`, `StatusStore`) own a session
      factory and open one transaction per operation
    - Every query and write is scoped to a partition (`graph`)
"""
