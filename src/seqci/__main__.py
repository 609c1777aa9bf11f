from seqci.cli import cli

cli()
