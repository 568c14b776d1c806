from catalog_sync.sync_locales import cli

cli()
