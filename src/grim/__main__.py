from grim.cli import main

main()
