"""
License domain package.

- catalog: the fixed feature catalog of this product edition.
- models: Feature, License, StorableLicense and API payload models.
- parser: authority/stored payload to License.
- selector: picks the active license among an organization's licenses.
- synthetic: stand-in license for organizations with none stored.

Nothing here performs I/O.
"""
