"""HTTP surface: routes, schemas, middleware and the upload boundary."""
