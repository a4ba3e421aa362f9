from sysview.cli import main

main()
