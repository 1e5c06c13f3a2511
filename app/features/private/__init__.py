"""
Private content feature.

Lets authors mark individual content items private and turns that flag into
node-access grants: private items are visible to their owner, to users with
"access private content" and editable by users with "edit private content".
"""
