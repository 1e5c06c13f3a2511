"""
Permission management feature module.

Site-wide roles and named permissions; supplies the capability checks used by
node access and the private content feature.
"""
